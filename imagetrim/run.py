"""
ImageTrim web entry point
Starts the FastAPI server and opens the browser.
"""

import logging
import threading
import time
import webbrowser

import uvicorn

HOST = "127.0.0.1"
PORT = 8000


def open_browser(host=HOST, port=PORT):
    """Open browser after a short delay to let the server start."""
    time.sleep(1.5)
    webbrowser.open(f"http://{host}:{port}")


def main(host=HOST, port=PORT, browser=True):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print(f"[ImageTrim] Starting server at http://{host}:{port}")
    if browser:
        print("[ImageTrim] Opening browser...")
        threading.Thread(target=open_browser, args=(host, port), daemon=True).start()

    uvicorn.run("imagetrim.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
