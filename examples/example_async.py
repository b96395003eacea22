"""
Example: Async PlainPage client usage

This example logs in, reads pages concurrently and shows how an expired
session ends in a redirect to the login page.
"""

import asyncio
import logging

from plainpage_client import (
    AsyncPlainPageClient,
    LoginRedirectError,
    LoginStatus,
    MemoryNavigator,
    PlainPageClientConfiguration,
)


async def main():
    """Main async example."""
    logging.basicConfig(level=logging.INFO)

    config = PlainPageClientConfiguration(
        base_url="http://localhost:8080/_api",
        # keep the session between runs of this script
        session_file=".plainpage-session.json",
    )
    navigator = MemoryNavigator("/wiki/start")

    async with AsyncPlainPageClient(config=config, navigator=navigator) as client:

        app = await client.get_app()
        print(f"Connected to {app.app_title!r}")

        # Example 1: Log in unless a stored session was restored
        if not client.logged_in:
            result = await client.login("admin", "YOUR_PASSWORD")
            if result.status == LoginStatus.INVALID_CREDENTIALS:
                print("Wrong username or password")
                return
            if result.status == LoginStatus.RATE_LIMITED:
                print(f"Too many attempts, try again in {result.retry_after}s")
                return
        print(f"Logged in as {client.user.display_name}")

        # Example 2: Concurrent requests share a single token refresh
        print("\nFetching pages concurrently...")
        try:
            pages = await asyncio.gather(
                client.fetch("/pages/wiki/start"),
                client.fetch("/pages/wiki/about"),
            )
        except LoginRedirectError as e:
            print(f"Session expired, login required (return to {e.return_to})")
            print(f"Navigator is now at {navigator.current_full_path}")
            return

        for page in pages:
            print(f"  {page}")

        # Example 3: Log out, revoking the refresh token
        await client.logout()
        print("\nLogged out")


if __name__ == "__main__":
    asyncio.run(main())
