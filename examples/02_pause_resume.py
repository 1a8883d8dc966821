"""
Pause, resume and cancel a chunked upload
"""
import asyncio
import os

from pinupload import UploadCoordinator, UploaderConfig, FileSource, UploadState, setup_logging

TARGET_URL = "https://uploads.pinata.cloud/v3/files"


async def main():
    setup_logging()
    config = UploaderConfig.with_jwt(os.environ["PINATA_JWT"])

    async with UploadCoordinator(config) as uploader:
        uploader.on('state', lambda state: print(f"State: {state.value}"))
        uploader.on('progress', lambda p: print(f"Progress: {p:.1f}%"))

        session = await uploader.start(FileSource("backup.tar"), "private", TARGET_URL)

        # Pause takes effect once the in-flight chunk is accepted
        await asyncio.sleep(5)
        uploader.pause()
        await uploader.wait()
        print(f"Paused at {session.offset:,}/{session.total_size:,} bytes")

        # Continue from the last confirmed offset
        uploader.resume()
        await uploader.wait()

        if session.state is UploadState.COMPLETED:
            print(f"Uploaded: {session.result.cid}")
        elif session.state is UploadState.FAILED:
            print(f"Failed: {session.last_error}")

        # Starting and immediately cancelling leaves nothing behind
        session = await uploader.start(FileSource("backup.tar"), "private", TARGET_URL)
        uploader.cancel()
        await uploader.wait()
        print(f"Cancelled: {session.state is UploadState.CANCELLED}")


if __name__ == "__main__":
    asyncio.run(main())
