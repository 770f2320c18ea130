"""HTTP surface of the panel proxy"""
