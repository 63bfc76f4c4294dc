"""Services subpackage - customers and delivery notes."""
