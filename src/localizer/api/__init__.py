"""Wire contracts for the localizer gRPC API."""
