"""External collaborators: sign-in verification, Neynar, Sentry."""
