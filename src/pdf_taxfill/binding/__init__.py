"""Per-field value pipeline: path resolution, transforms, formatting, conditions."""
