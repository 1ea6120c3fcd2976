# dataselect/api/dependencies.py
"""FastAPI dependencies that read a ``DataSelectQuery`` from query parameters"""

from typing import Annotated, List, Optional

from fastapi import Depends, Query

from dataselect.query.parser import parse_data_select_query
from dataselect.query.schemas import DataSelectQuery


def get_data_select_query(
    items_per_page: Annotated[Optional[str], Query(alias="itemsPerPage")] = None,
    page: Annotated[Optional[str], Query()] = None,
    sort_by: Annotated[Optional[List[str]], Query(alias="sortBy")] = None,
    filter_by: Annotated[Optional[List[str]], Query(alias="filterBy")] = None,
    metric_names: Annotated[Optional[List[str]], Query(alias="metricNames")] = None,
    aggregations: Annotated[Optional[List[str]], Query()] = None,
    metric_scope: Annotated[Optional[str], Query(alias="metricScope")] = None,
) -> DataSelectQuery:
    """
    Build the selection query for a list endpoint.

    Parameters are read as strings so malformed values degrade to the
    no-op presets instead of producing a 422 response. List parameters
    accept both repeated keys and comma separated values, e.g.
    ``?sortBy=d,creationTimestamp,a,name``.
    """
    return parse_data_select_query(
        items_per_page=items_per_page,
        page=page,
        sort_by=sort_by,
        filter_by=filter_by,
        metric_names=metric_names,
        aggregations=aggregations,
        metric_scope=metric_scope,
    )


DataSelectQueryDep = Annotated[DataSelectQuery, Depends(get_data_select_query)]
