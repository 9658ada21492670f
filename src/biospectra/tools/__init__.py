"""Optional developer tools (plotting). Requires the ``plot`` extra."""
