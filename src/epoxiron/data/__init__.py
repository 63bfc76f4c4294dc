"""Data subpackage - rate card import and note export."""
