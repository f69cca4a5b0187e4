"""
activity_stream — A Persistent Activity Stream Store
======================================================
Records "actor performed verb on object" events with threaded replies,
serves them through named, pluggable query filters, and keeps stored
records in step with the current schema through an ordered upgrade
pipeline.  Embed it in a host application — then configure verbs,
streams, filters and upgraders from YAML.

Package layout::

    activity_stream/
    ├── config.py          # YAML → typed registry configuration
    ├── errors.py          # Error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + unit-of-work session helper
    │   └── models.py      # Activity, ActivityReply, AudienceEntry
    ├── engine/
    │   ├── activities.py  # ActivitiesList + ActivityMessage
    │   ├── helpers.py     # user:/doc: actor and object identifiers
    │   ├── plugins.py     # "module:attr" implementation references
    │   ├── verbs.py       # Verb registry (label keys + compat aliases)
    │   ├── streams.py     # Named activity streams (verb sets)
    │   ├── filters.py     # Filter registry + built-in filters
    │   ├── audience.py    # "seen by" filter with its own audience table
    │   └── upgraders.py   # Ordered upgrader registry + built-in upgraders
    └── services/
        ├── activity_service.py  # ActivityStreamService, the store engine
        └── startup.py           # Host "repository ready" hook
"""

__version__ = "0.1.0"
