"""Infrastructure adapters for LeadIntake."""
