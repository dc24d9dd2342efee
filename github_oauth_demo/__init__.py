"""Log in with GitHub and list your repositories."""
