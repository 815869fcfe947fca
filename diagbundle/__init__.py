"""diagbundle: diagnostic support bundle orchestration for analytics clusters."""

__version__ = "0.1.0"
