"""Command-line tools for SetlistScout.

- ``python -m setlistscout.cli`` manages the artist tour cache (warm,
  inspect, keys, clear) and samples tour names (discover).

Heavy imports are deferred inside the command runner so ``--help`` stays
fast and does not read settings.
"""
