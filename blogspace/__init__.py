"""BlogSpace multi-user blogging application."""
