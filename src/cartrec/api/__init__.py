"""FastAPI application module for CartRec.

This module contains the FastAPI application, route handlers, and API
endpoints for the recommendation service. It exposes cart recommendations,
model training statistics and health checks over HTTP.
"""
