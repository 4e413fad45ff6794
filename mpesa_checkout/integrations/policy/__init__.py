"""Gateway-facing policies: response normalization and webhook interpretation."""
