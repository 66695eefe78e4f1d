"""Config, manifest and source-code transformers."""
