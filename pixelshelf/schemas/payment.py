from pixelshelf.schemas.common import CamelModel


class RedirectUrlOut(CamelModel):
    url: str


class WebhookAck(CamelModel):
    received: bool = True
