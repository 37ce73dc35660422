# Gateway - chat command handlers for guild configuration
