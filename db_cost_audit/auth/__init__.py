"""AWS session and credential handling."""
