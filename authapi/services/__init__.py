"""Business logic: auth workflows and the user store."""
