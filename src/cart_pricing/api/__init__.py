"""API subpackage - HTTP surface for cart repricing and the mock pricing service."""
