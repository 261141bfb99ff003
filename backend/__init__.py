"""
BalloonWatch Backend Package.

Balloon telemetry proxy and trajectory service built with Flask,
requests, and NumPy.

Modules:
    api/         REST endpoints for snapshots, history, trajectories, weather, status
    models/      Position value types
    ingestion/   Feed client, tolerant parser, retry policy, history aggregator
    analytics/   Trajectory reconstruction and NumPy summary statistics
    services/    External API integrations (Open-Meteo weather)
    cache.py     Thread-safe single-slot cache for the trajectory dataset
    config.py    Centralized configuration from environment variables
    exceptions.py Error types shared across layers
"""

__version__ = '1.0.0'
