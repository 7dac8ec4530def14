"""Configuration module for chunkcache."""
