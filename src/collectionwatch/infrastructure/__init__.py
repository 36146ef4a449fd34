"""Infrastructure adapters: persistence, serializers, notifications, observability."""
