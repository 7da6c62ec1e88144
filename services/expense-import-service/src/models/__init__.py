"""Expense import data model."""
