#This file is for development purposes only

import logging
import sys

from bugzilla_client_impl import get_client


def main():
    logging.basicConfig(level=logging.DEBUG)
    bug_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    client = get_client(interactive=True)

    print(f"\nFetching bug {bug_id}...")
    try:
        bug = client.get_bug(bug_id)
        print(f"- {bug}")
        print(f"  last changed {bug.last_change_time}, {len(bug.comments)} comments, {len(bug.attachments)} attachments")
        for flag in bug.flags:
            print(f"  flag {flag.name}{flag.status} {flag.requestee}")
    except Exception as e:
        print(f"Error connecting to Bugzilla: {e}")

if __name__ == "__main__":
    main()
