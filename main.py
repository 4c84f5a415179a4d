import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def run() -> None:
    uvicorn.run(
        "healthmate.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("ENVIRONMENT", "").lower() == "development",
    )


if __name__ == "__main__":
    run()
