"""FarmTrack core: record stores, derived views and the forecast cache."""
