"""Clinical documentation AI pipelines: risk assessment, structured extraction, notes."""
