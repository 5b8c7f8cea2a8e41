"""TeleCare telemedicine backend."""
