"""Run orchestration around the reconciliation core."""
