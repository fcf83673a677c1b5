"""FastAPI application module for MitraRec.

This module contains the FastAPI application, route handlers, and API
endpoints for the recommendation service and the seller dashboard statistics.
"""
