"""SafeTrail safety companion backend."""
