"""Proxy log ingestion and anomaly detection service."""
