"""Core interfaces shared by the domain, application and infrastructure layers."""
