"""
Outbound message texts (Indonesian, Telegram Markdown).

Values typed by hosts or managers (names, emails, notes) are escaped before
they are placed inside Markdown.
"""
from datetime import datetime
from typing import Optional

from telegram.helpers import escape_markdown

from parsing.metric_parser import format_rupiah

NOT_DETECTED = 'Tidak terdeteksi'
DISPLAY_TIME_FORMAT = '%d/%m/%Y %H:%M:%S'


def _duration(label: Optional[str]) -> str:
    return label or NOT_DETECTED


def _md(value) -> str:
    """Escape a user-supplied value for legacy Markdown."""
    return escape_markdown(str(value if value is not None else ''), version=1)


def display_time(timestamp: str) -> str:
    """Render a stored ISO timestamp in local time; unknown formats pass through."""
    try:
        moment = datetime.fromisoformat(timestamp)
    except (TypeError, ValueError):
        return _md(timestamp)
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(DISPLAY_TIME_FORMAT)


# ─── Onboarding ───────────────────────────────────────────────────

WELCOME_NEW_USER = (
    "👋 *Selamat datang di Live Session Reporting Bot!*\n\n"
    "Untuk melanjutkan registrasi, ikuti langkah berikut:\n\n"
    "1️⃣ Masukkan *Nama Lengkap* Anda\n"
    "2️⃣ Masukkan *Email* Anda\n"
    "3️⃣ Buat *Password* untuk login dashboard\n\n"
    "Mari kita mulai! Silakan masukkan *nama lengkap* Anda:\n"
    "Contoh: Budi Santoso"
)

ASK_FULL_NAME = "Silakan masukkan *nama lengkap* Anda untuk melanjutkan registrasi."

NAME_TOO_SHORT = (
    "❌ Nama terlalu pendek. Minimal 3 karakter.\n\n"
    "Silakan masukkan nama lengkap yang valid:"
)

INVALID_EMAIL = (
    "❌ *Format email tidak valid!*\n\n"
    "Silakan masukkan email yang benar.\n"
    "Contoh: budi.santoso@example.com"
)

EMAIL_TAKEN = (
    "❌ *Email sudah terdaftar!*\n\n"
    "Email ini sudah digunakan oleh user lain.\n"
    "Silakan gunakan email yang berbeda."
)

PASSWORD_TOO_SHORT = (
    "❌ *Password terlalu pendek!*\n\n"
    "Password minimal 6 karakter.\n\n"
    "Silakan masukkan password yang lebih kuat:"
)

PASSWORD_TOO_LONG = (
    "❌ Password terlalu panjang (maksimal 50 karakter).\n\n"
    "Silakan masukkan password yang lebih pendek:"
)


def ask_email(full_name: Optional[str] = None, after_save: bool = False) -> str:
    text = "✅ Nama berhasil disimpan!\n\n" if after_save else ""
    text += "📧 *Langkah 2: Email*\n\n"
    if full_name and not after_save:
        text += f"Halo {_md(full_name)}!\n\n"
    return text + (
        "Silakan masukkan alamat email Anda:\n"
        "Contoh: budi.santoso@example.com\n\n"
        "Email ini akan digunakan untuk login ke dashboard."
    )


def ask_password(full_name: Optional[str] = None, email: Optional[str] = None,
                 after_save: bool = False) -> str:
    text = "✅ Email berhasil disimpan!\n\n" if after_save else ""
    text += "🔐 *Langkah 3: Password*\n\n"
    if full_name and not after_save:
        text += f"Halo {_md(full_name)}!\n\nEmail: {_md(email)}\n\n"
    return text + (
        "Sekarang buat password untuk login ke dashboard:\n\n"
        "⚠️ Password minimal 6 karakter\n"
        "💡 Gunakan kombinasi huruf dan angka\n\n"
        "Ketik password Anda sekarang:"
    )


def registration_complete(full_name: str, email: str) -> str:
    return (
        "🎉 *Registrasi Selesai!*\n\n"
        f"Terima kasih, {_md(full_name)}!\n\n"
        "📋 *Informasi Login Dashboard:*\n"
        f"• Email: {_md(email)}\n"
        "• Password: ✅ Sudah diset\n\n"
        "⏳ *Status:* Menunggu persetujuan Manager\n\n"
        "💡 *Cara Login ke Dashboard:*\n"
        "1. Buka website dashboard\n"
        f"2. Masukkan Email: {_md(email)}\n"
        "3. Masukkan Password yang Anda buat\n"
        "4. Klik Login\n\n"
        "Anda akan mendapat notifikasi setelah akun diaktifkan oleh Manager.\n\n"
        "_Simpan Email dan Password Anda dengan aman!_ 🔐"
    )


def pending_approval(full_name: str, email: Optional[str] = None) -> str:
    text = "⏳ *Akun Anda Belum Disetujui*\n\n"
    text += f"Halo {_md(full_name)}!\n\n"
    if email:
        text += (
            "📋 *Informasi Login Anda:*\n"
            f"• Email: {_md(email)}\n"
            "• Password: ✅ Sudah diset\n\n"
        )
    return text + (
        "Pendaftaran Anda sedang menunggu persetujuan dari Manager.\n"
        "Anda akan mendapat notifikasi setelah akun Anda diaktifkan."
    )


def account_inactive(full_name: str, submitting: bool = False) -> str:
    text = (
        "❌ *Akun Anda Telah Dinonaktifkan*\n\n"
        f"Halo {_md(full_name)}!\n\n"
        "Akun Anda saat ini dalam status tidak aktif.\n"
    )
    if submitting:
        text += "Anda tidak dapat mengirim laporan.\n"
    return text + "Silakan hubungi Manager untuk informasi lebih lanjut."


def welcome_back(full_name: str, email: str) -> str:
    return (
        f"✅ *Selamat datang kembali,* {_md(full_name)}!\n\n"
        "📋 *Informasi Login Anda:*\n"
        f"• Email: {_md(email)}\n"
        "• Password: ✅ Sudah diset\n\n"
        "📸 *Cara Menggunakan Bot:*\n"
        "Kirimkan screenshot hasil LIVE Anda, dan bot akan otomatis memproses GMV dan durasi."
    )


# ─── Report ingestion ─────────────────────────────────────────────

ACCESS_DENIED_UNREGISTERED = "❌ Akses Ditolak. Mohon ketik /start terlebih dahulu."

PROCESSING_SCREENSHOT = "⏳ Memproses screenshot..."

DOWNLOAD_FAILED = "❌ Gagal mengunduh foto. Coba lagi!"


def ocr_failed(error_text: str) -> str:
    return (
        "❌ Gagal membaca teks dari screenshot.\n\n"
        f"Error: {error_text}\n\n"
        "Pastikan screenshot jelas dan coba ambil ulang."
    )


def screenshot_summary(gmv_amount, duration_label: Optional[str]) -> str:
    return (
        "✅ *Screenshot Berhasil Diproses!*\n\n"
        f"📊 GMV Terdeteksi: {format_rupiah(gmv_amount)}\n"
        f"⏱️ Durasi LIVE: {_duration(duration_label)}\n\n"
        "━━━━━━━━━━━━━━━━━━━\n"
        "Apakah data ini sudah benar?\n\n"
        "• Ketik *Y* atau *Ya* untuk Simpan ✅\n"
        "• Ketik *N* atau *Tidak* untuk Batal ❌\n"
        "• Kirim foto baru untuk scan ulang 📸"
    )


# ─── Confirmation ─────────────────────────────────────────────────

def report_saved(report_id: int, gmv_amount, duration_label: Optional[str], saved_at: str) -> str:
    return (
        "✅ *Laporan Berhasil Disimpan!*\n\n"
        f"📊 GMV: {format_rupiah(gmv_amount)}\n"
        f"⏱️ Durasi: {_duration(duration_label)}\n"
        f"🆔 Report ID: #{report_id}\n"
        f"📅 Waktu: {saved_at}\n\n"
        "Status: Menunggu verifikasi manager"
    )


REPORT_SAVE_FAILED = "❌ Terjadi kesalahan saat menyimpan laporan. Silakan coba lagi."

REPORT_CANCELLED = (
    "❌ *Laporan Dibatalkan*\n\n"
    "Silakan kirim screenshot GMV yang baru."
)

INVALID_CONFIRMATION = (
    "⚠️ *Konfirmasi Tidak Valid*\n\n"
    "Silakan ketik:\n"
    "• *Y* atau *Ya* untuk Simpan ✅\n"
    "• *N* atau *Tidak* untuk Batal ❌"
)


# ─── Dispatcher ───────────────────────────────────────────────────

FALLBACK_PROMPT = "Mohon kirimkan *screenshot laporan GMV* atau ketik /start untuk memulai."

GENERIC_APOLOGY = "❌ Terjadi kesalahan saat memproses laporan Anda. Silakan coba lagi."


# ─── Manager actions ──────────────────────────────────────────────

def account_approved(full_name: str, email: str) -> str:
    return (
        "🎉 *Akun Anda Telah Diaktifkan!*\n\n"
        f"Halo {_md(full_name)}!\n\n"
        "✅ Selamat! Akun Anda telah disetujui oleh Manager.\n\n"
        "📋 *Informasi Login Dashboard:*\n"
        f"• Email: {_md(email)}\n"
        "• Password: ✅ Sudah diset (Gunakan password yang Anda buat)\n"
        "• Status: Aktif ✅\n\n"
        "📸 *Cara Menggunakan Bot:*\n"
        "1. Kirim screenshot hasil LIVE Anda\n"
        "2. Bot akan otomatis memproses GMV dan durasi\n"
        "3. Konfirmasi data dengan ketik *Y* atau *Ya*\n"
        "4. Laporan tersimpan dan menunggu verifikasi manager\n\n"
        "Selamat bekerja! 🚀"
    )


def registration_rejected(full_name: str) -> str:
    return (
        "❌ *Pendaftaran Ditolak*\n\n"
        f"Halo {_md(full_name)},\n\n"
        "Maaf, pendaftaran Anda tidak dapat disetujui saat ini.\n\n"
        "Jika Anda merasa ini adalah kesalahan, silakan hubungi Manager untuk informasi lebih lanjut.\n\n"
        "Terima kasih."
    )


def account_deactivated(full_name: str) -> str:
    return (
        "❌ *Akun Anda Telah Dinonaktifkan*\n\n"
        f"Halo {_md(full_name)},\n\n"
        "Akun Anda telah dinonaktifkan oleh Manager.\n\n"
        "Anda tidak dapat lagi mengirim laporan hingga akun Anda diaktifkan kembali.\n\n"
        "Jika ada pertanyaan, silakan hubungi Manager Anda."
    )


def account_reactivated(full_name: str, email: str) -> str:
    return (
        "✅ *Akun Anda Telah Diaktifkan Kembali!*\n\n"
        f"Halo {_md(full_name)},\n\n"
        "Kabar baik! Akun Anda telah diaktifkan kembali oleh Manager.\n\n"
        "📋 *Informasi Login Dashboard:*\n"
        f"• Email: {_md(email)}\n"
        "• Status: Aktif ✅\n\n"
        "Anda sekarang dapat mengirim laporan GMV LIVE session Anda lagi.\n\n"
        "Selamat bekerja! 🚀"
    )


def report_reviewed(report_id: int, gmv_amount, duration_label: Optional[str],
                    created_at: str, verified: bool, notes: Optional[str] = None) -> str:
    if verified:
        header = "✅ *Laporan Diverifikasi!*"
        notes_label = "📝 *Catatan Manager:*"
        footer = (
            "Status: *VERIFIED* ✅\n\n"
            "Selamat! Laporan Anda telah disetujui oleh Manager. 🎉"
        )
    else:
        header = "❌ *Laporan Ditolak*"
        notes_label = "📝 *Alasan Penolakan:*"
        footer = (
            "Status: *REJECTED* ❌\n\n"
            "Silakan periksa kembali screenshot Anda dan kirim ulang laporan yang benar."
        )
    text = (
        f"{header}\n\n"
        f"📊 *Report ID:* #{report_id}\n\n"
        f"💰 *GMV:* {format_rupiah(gmv_amount)}\n"
        f"⏱️ *Durasi LIVE:* {_duration(duration_label)}\n"
        f"📅 *Tanggal:* {display_time(created_at)}\n\n"
    )
    if notes:
        text += f"{notes_label}\n{_md(notes)}\n\n"
    return text + footer
