"""DerivDesk project package."""
