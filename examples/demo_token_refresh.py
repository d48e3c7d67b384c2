#!/usr/bin/env python3
"""Demonstration of token rotation while requests are in flight.

This script shows how to:
1. Build a client with a subscriber ID and a bearer token provider
2. Send a query synchronously and a subscription handshake asynchronously
3. Swap the token provider from a background refresher thread

Set APPSYNC_URL and APPSYNC_TOKEN before running.
"""

import os
import threading

from gql_appsync.core import (
    AppSyncClient,
    HTTPTransport,
    PostRequest,
    StaticTokenProvider,
)


def main():
    url = os.environ.get("APPSYNC_URL")
    token = os.environ.get("APPSYNC_TOKEN")
    if not url or not token:
        print("Set APPSYNC_URL and APPSYNC_TOKEN to run this demo.")
        return

    client = (
        AppSyncClient.builder(HTTPTransport(url))
        .credential_provider(StaticTokenProvider(token))
        .subscriber_id("demo-client")
        .build()
    )

    with client:
        print("1. Query")
        response = client.post(PostRequest(query="query { __typename }"))
        print(f"   data: {response.data}")

        print("\n2. Subscription handshake (async)")
        done = threading.Event()

        def on_subscribed(response, error):
            if error is not None:
                print(f"   failed: {error}")
            elif response.subscription:
                for conn in response.subscription.mqtt_connections:
                    print(f"   channel: {conn.url} topics={conn.topics}")
            else:
                print(f"   errors: {response.errors}")
            done.set()

        client.post_async(
            PostRequest(query="subscription OnMessage { onMessage { id } }"),
            on_subscribed,
        )

        print("\n3. Rotating token while the handshake settles")
        refresher = threading.Thread(
            target=client.update_credential_provider,
            args=(StaticTokenProvider(os.environ.get("APPSYNC_NEW_TOKEN", token)),),
        )
        refresher.start()
        refresher.join()

        done.wait(timeout=30)


if __name__ == "__main__":
    main()
