import uvicorn

from readalong import config

if __name__ == "__main__":
    uvicorn.run("readalong.main:socket_app", host="0.0.0.0", port=config.PORT)
