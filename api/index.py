from mangum import Mangum

from pixelshelf.main import app

# For Vercel
handler = Mangum(app, lifespan="auto")
