"""Clients for the collaborators of the gateway (Kubernetes, metad, Prometheus)."""
