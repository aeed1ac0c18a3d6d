"""Cattery: a server-rendered CRUD web application for cats."""
