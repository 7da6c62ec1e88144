"""CSV tokenizing and column inference."""
