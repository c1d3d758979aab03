"""Domain layer for LeadIntake."""
