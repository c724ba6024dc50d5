"""Application layer - workflow services and DTOs."""
