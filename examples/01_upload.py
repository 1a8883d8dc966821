"""
Upload files with the facade
"""
import asyncio
import os

from pinupload import UploadFacade, UploaderConfig, BytesSource

TARGET_URL = "https://uploads.pinata.cloud/v3/files"


async def main():
    config = UploaderConfig.with_jwt(os.environ["PINATA_JWT"])

    async with UploadFacade(config, resolve_results=True) as uploader:

        # Small payloads go out as one multipart request
        result = await uploader.upload(b"hello world", "public", TARGET_URL, name="hello.txt")
        print(f"Uploaded: {result.cid}")

        # JSON content
        source = BytesSource.from_json({"name": "pinupload", "version": 1})
        result = await uploader.upload(source, "private", TARGET_URL)
        print(f"Uploaded JSON: {result.cid}")

        # Large files use the chunked path; tags and groups travel as metadata
        def on_progress(percentage):
            print(f"Progress: {percentage:.1f}%")

        result = await uploader.upload(
            "video.mp4",
            "public",
            TARGET_URL,
            keyvalues={"project": "demo"},
            group_id="my-group",
            streamable=True,
            progress_callback=on_progress,
        )
        print(f"Uploaded video: {result.cid} ({result.size:,} bytes)")


if __name__ == "__main__":
    asyncio.run(main())
