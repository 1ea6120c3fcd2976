"""Core settings, logging and exceptions for the data selection engine."""
