"""UI components for bot messages"""
