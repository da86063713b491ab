"""Detection layer: drop detection, severity, stationary verification and the pipeline."""
