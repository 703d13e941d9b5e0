# app/services/qr.py
import io, base64
import qrcode  # type: ignore

def qr_data_url(text: str) -> str:
    """PNG do envelope em data URL, para o front exibir direto num <img>."""
    img = qrcode.make(text)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{b64}"
