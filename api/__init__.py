"""
API Layer for the Face Search Demo

This package provides the FastAPI-based API layer that exposes:
- REST endpoint issuing pre-signed upload URLs for probe images
- REST endpoint searching the face collection by an uploaded image
- Liveness and health check endpoints
"""
