"""Skill selection application built on `matrixkit`."""
