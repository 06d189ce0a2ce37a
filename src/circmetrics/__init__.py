"""circmetrics - Async client and check manager for the Circonus monitoring API.

circmetrics locates (or creates) the HTTP trap check that a process submits
metrics to, selects a broker for new checks, and wraps the REST resources it
needs along the way.

Key modules:

- :mod:`circmetrics.api` - REST client, resource models and CID validation
- :mod:`circmetrics.checkmgr` - Trap resolution, broker selection, metric inventory
- :mod:`circmetrics.config` - YAML configuration schema and loader
- :mod:`circmetrics.cli` - ``circmetrics`` command line tool
"""

__version__ = "0.1.0"
