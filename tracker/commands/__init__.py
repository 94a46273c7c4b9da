"""Inbound command processing: authorization gate + serialized dispatch.

Every frame from every connection flows through the same pipeline so rejections
show up consistently in server logs.
"""
