# Shiptivity: client lanes with dense per-lane priorities
#
# Components:
#   schema.py  - Data model (Client, ClientStatus)
#   errors.py  - Error kinds returned to API callers
#   store.py   - SQLite persistence layer, one transaction per operation
#   lanes.py   - Lane snapshot reader and density checks
#   reorder.py - Reordering engine (lane transfers and rank changes)
#   config.py  - YAML/env configuration
