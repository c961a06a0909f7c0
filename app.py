import uvicorn

from pixelshelf.main import app  # noqa: F401


if __name__ == "__main__":

    uvicorn.run("pixelshelf.main:app", host="0.0.0.0", port=7860, reload=True)
