"""datadesk: data-analyst agent backend: task escalation, prior-analysis lookup and warehouse tools."""

__version__ = "0.1.0"
