"""spirepack - supply a SPIRE agent sidecar into application droplets."""
