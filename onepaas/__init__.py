"""OnePaaS deployment worker: clone, build, chart and release an application."""

__version__ = "0.1.0"
