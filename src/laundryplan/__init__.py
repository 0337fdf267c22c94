"""Daily Mangle/Doblado workload estimation and washing-order balancing."""
