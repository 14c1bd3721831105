"""Collectors turning /proc sources and the allocator benchmark into gauge groups"""
