"""Relational store access: pool, transactions, tables, writers."""
