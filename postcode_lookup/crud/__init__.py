"""Query helpers over the relational store."""
