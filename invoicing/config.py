"""Core application configuration.

Tunables that may change per deployment (identifier hashing salt, pagination
bounds, queue backend, webhook secret, extra data partitions) are centralized
here as module constants read from the environment. Grouped settings are
plain dicts so tests can monkeypatch individual values.
"""
from __future__ import annotations

import os


def _parse_mapping(raw: str) -> dict[str, str]:
	"""Parse ``name=value,name2=value2`` into a dict (blank entries ignored)."""
	mapping: dict[str, str] = {}
	for chunk in raw.split(","):
		if "=" not in chunk:
			continue
		name, value = chunk.split("=", 1)
		if name.strip() and value.strip():
			mapping[name.strip()] = value.strip()
	return mapping


# ------------------------------ Identifiers ------------------------------- #
HASHING_SETTINGS: dict[str, str | int] = {
	# Secret mixed into every external identifier. Changing it invalidates all
	# identifiers previously handed out to API consumers.
	"salt": os.getenv("HASH_SALT", "invoicing-local-salt"),
	# Length of the integrity tag prepended to the encoded primary key.
	"tag_bytes": 4,
}

# ------------------------------- Pagination ------------------------------- #
PAGINATION_SETTINGS: dict[str, int] = {
	"default_per_page": 20,
	"max_per_page": 500,
}

# --------------------------------- Queue ---------------------------------- #
QUEUE_SETTINGS: dict[str, dict[str, int] | int | float | str | bool] = {
	"priorities": {  # Lower number = higher priority
		"high": 0,
		"normal": 5,
		"low": 10,
	},
	"warn_depth": 1000,
	"max_in_memory": 5000,
	"use_redis": os.getenv("USE_REDIS_QUEUE", "false").lower() in ("1", "true", "yes"),
	"redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
	"redis_ready_key": "invoicing:ready_queue",
	"redis_scheduled_key": "invoicing:scheduled_jobs",
	"redis_health_check_timeout": 2.0,
	"redis_reconnect_interval": 5.0,
}

# ------------------------------ Data partitions --------------------------- #
# Additional isolated databases keyed by partition name, e.g.
# TENANT_DATABASE_URLS="eu=postgresql://...,us=postgresql://..."
# Background jobs carry the partition name they were enqueued for.
TENANT_DATABASE_URLS: dict[str, str] = _parse_mapping(os.getenv("TENANT_DATABASE_URLS", ""))

# ------------------------------ Email webhooks ---------------------------- #
# Shared secret expected in X-Webhook-Token on provider callbacks. When unset
# the endpoint accepts unsigned events (local development).
WEBHOOK_TOKEN: str | None = os.getenv("WEBHOOK_TOKEN") or None

__all__ = [
	"HASHING_SETTINGS",
	"PAGINATION_SETTINGS",
	"QUEUE_SETTINGS",
	"TENANT_DATABASE_URLS",
	"WEBHOOK_TOKEN",
]
