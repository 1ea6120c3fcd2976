"""Selection stages (filter, sort, paginate) and the engine that chains them."""
