"""WhatsApp bot: lifecycle supervision around WhatsApp Web plus an HTTP status surface."""

__version__ = "0.1.0"
