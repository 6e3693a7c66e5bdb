"""Application layer: DTOs and service ports shared by infrastructure and API."""
