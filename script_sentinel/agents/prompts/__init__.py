"""System prompts for the oracle agents."""
