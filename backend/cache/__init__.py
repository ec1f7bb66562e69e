"""On-disk caches for rendered output."""
