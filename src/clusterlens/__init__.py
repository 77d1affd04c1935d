"""ClusterLens: live operational picture of a microservice cluster."""

__version__ = "0.1.0"
