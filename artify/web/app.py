"""Streamlit web app for the Artify application."""

import sys
from pathlib import Path

import numpy as np
import streamlit as st

# Add the parent directory to the path so we can import the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from artify.acquisition import AcquisitionMode
from artify.app import ArtifyApp
from artify.camera import SessionState, camera_supported
from artify.codec import decode_data_uri, load_image
from artify.config import load_config
from artify.log import configure_logging
from artify.styles import get_categories, get_styles_by_category
from artify.web.runtime import BackgroundLoop, SessionWatchdog

MODE_LABELS = {
    "Upload Photo": AcquisitionMode.UPLOAD,
    "Use Camera": AcquisitionMode.CAMERA,
}


def get_app() -> ArtifyApp:
    """Get this browser session's application, creating it on first use.

    A session whose watchdog expired gets a fresh application and loop.
    """
    loop = st.session_state.get('artify_loop')
    if loop is None or not loop.is_running:
        config = load_config()
        configure_logging(config['log_level'])
        loop = BackgroundLoop()
        app = ArtifyApp(config)
        watchdog = SessionWatchdog(app, config, on_expired=loop.stop)
        loop.spawn(watchdog.run())
        st.session_state.artify_loop = loop
        st.session_state.artify_app = app
        st.session_state.artify_watchdog = watchdog
    st.session_state.artify_watchdog.touch()
    return st.session_state.artify_app


def run(coro):
    """Run a coroutine on the session's background loop."""
    return st.session_state.artify_loop.run(coro)


def show_notifications(app: ArtifyApp) -> None:
    for notification in app.notifier.drain():
        icon = "⚠️" if notification.is_error else "✅"
        st.toast(f"**{notification.title}**  \n{notification.description}", icon=icon)


def step_header(number: int, title: str, description: str) -> None:
    st.subheader(f"{number}. {title}")
    st.caption(description)


def show_photo_input(app: ArtifyApp) -> None:
    """Step 1: upload or capture a photo."""
    step_header(1, "Provide a Photo", "Upload an existing photo or capture a new one with your camera.")

    photo = app.photo
    if photo is not None:
        col1, col2 = st.columns([1, 4])
        with col1:
            st.image(load_image(photo), use_container_width=True)
        with col2:
            st.success("**Photo Selected!** You can now proceed to select a style.")
            if st.button("Clear", key="clear_photo"):
                app.acquisition.clear()
                st.rerun()
        return

    current = next(label for label, mode in MODE_LABELS.items() if mode is app.acquisition.mode)
    label = st.radio("Source", list(MODE_LABELS), index=list(MODE_LABELS).index(current),
                     horizontal=True, label_visibility="collapsed")
    if MODE_LABELS[label] is not app.acquisition.mode:
        run(app.acquisition.set_mode(MODE_LABELS[label]))

    if app.acquisition.mode is AcquisitionMode.UPLOAD:
        show_upload(app)
    else:
        show_camera(app)


def show_upload(app: ArtifyApp) -> None:
    uploaded_file = st.file_uploader(
        "Click to upload or drag and drop",
        type=["jpg", "jpeg", "png", "webp"],
        help="JPG, PNG, WEBP (max 4MB)",
    )
    if uploaded_file is None:
        app.acquisition.cancel_upload()
        return

    # Only handle each uploaded file once across reruns
    if st.session_state.get('last_upload_id') == uploaded_file.file_id:
        return
    st.session_state.last_upload_id = uploaded_file.file_id

    if app.acquisition.upload(uploaded_file.getvalue(), uploaded_file.type) is not None:
        st.rerun()


def show_camera(app: ArtifyApp) -> None:
    session = app.session

    if 'camera_supported' not in st.session_state:
        st.session_state.camera_supported = camera_supported(app.devices)
    if not st.session_state.camera_supported:
        st.error("**Camera Not Supported**  \nNo camera is available. Please use the upload option instead.")
        return

    if session.state is SessionState.ACTIVE:
        show_live_preview(app)
        col1, col2, col3 = st.columns(3)
        if col1.button("📸 Capture", use_container_width=True):
            if run(app.acquisition.capture()) is not None:
                st.rerun()
        if col2.button("Stop Camera", use_container_width=True):
            run(app.acquisition.stop_camera())
            st.rerun()
        if col3.button("Switch Camera", use_container_width=True):
            with st.spinner("Switching camera..."):
                run(app.acquisition.switch_camera())
            st.rerun()
        return

    if session.state is SessionState.ERROR and session.error is not None:
        st.error(f"**{session.error.title}**  \n{session.error.message}")

    st.info("Position yourself and capture a new photo.")
    if st.button("Start Camera"):
        with st.spinner("Starting camera..."):
            run(app.acquisition.start_camera())
        st.rerun()


@st.fragment(run_every=0.2)
def show_live_preview(app: ArtifyApp) -> None:
    """Live camera view, mirrored for selfie framing."""
    st.session_state.artify_watchdog.touch()
    sink = app.session.sink
    if sink is None or sink.latest_frame is None:
        st.warning("Camera is on, but no video is visible. Try switching cameras or check device permissions.")
        return
    st.image(np.fliplr(sink.latest_frame), use_container_width=True)


def show_style_grid(app: ArtifyApp) -> None:
    """Step 2: choose an art style."""
    step_header(2, "Choose an Art Style", "Select a style to transform your photo. A preview will appear below.")

    orchestrator = app.orchestrator
    selected_id = orchestrator.selected_style.id if orchestrator.selected_style else None

    categories = get_categories()
    tabs = st.tabs(categories)
    for tab, category in zip(tabs, categories):
        with tab:
            styles = get_styles_by_category(category)
            columns = st.columns(4)
            for i, style in enumerate(styles):
                with columns[i % 4]:
                    button_type = "primary" if style.id == selected_id else "secondary"
                    if st.button(style.name, key=f"style_{style.id}", type=button_type,
                                 help=style.prompt, use_container_width=True):
                        with st.spinner("Generating Preview..."):
                            run(orchestrator.select_style(app.photo, style))
                        st.rerun()


def show_result(app: ArtifyApp) -> None:
    """Step 3: preview, high resolution render and download."""
    step_header(3, "Generate & Download",
                "Create the high-resolution artwork and download it.")

    orchestrator = app.orchestrator
    image = app.display_image
    if image is not None:
        caption = {"preview": "Preview", "final": "High resolution artwork"}.get(image.source_kind.value, "Your photo")
        st.image(load_image(image), caption=caption, use_container_width=True)
    else:
        st.info("Select a photo and style")

    col1, col2, col3 = st.columns(3)
    style = orchestrator.selected_style
    if col1.button("Generate High-Res", disabled=style is None or app.photo is None, use_container_width=True):
        with st.spinner("Generating artwork..."):
            run(orchestrator.request_final(app.photo, style))
        st.rerun()

    prepared = orchestrator.prepare_download(app.photo)
    if prepared is not None:
        data, filename, mime = prepared
        col2.download_button("Download Image", data=data, file_name=filename, mime=mime,
                             disabled=style is None, on_click=orchestrator.announce_download,
                             use_container_width=True)

    result = orchestrator.final or orchestrator.preview
    if col3.button("Save to Collage", disabled=result is None or style is None, use_container_width=True):
        orchestrator.save_to_collage(result, style.id)
        st.rerun()


def show_collage(app: ArtifyApp) -> None:
    st.sidebar.title("Recent Creations")
    entries = app.store.list_recent(12)
    if not entries:
        st.sidebar.caption("Saved artworks will appear here.")
        return
    for entry in entries:
        try:
            _, payload = decode_data_uri(entry.image_data_uri)
        except ValueError:
            continue
        st.sidebar.image(payload, caption=entry.style_name, use_container_width=True)


def main():
    """Main function for the Streamlit web app."""
    st.set_page_config(page_title="Artify", page_icon="🎨", layout="wide")

    st.title("Artify")
    st.markdown("Turn your photos into art. Provide a photo, pick a style and download your artwork.")

    app = get_app()

    show_photo_input(app)
    if app.photo is not None:
        st.divider()
        show_style_grid(app)
        if app.orchestrator.selected_style is not None or app.orchestrator.preview is not None:
            st.divider()
            show_result(app)

    show_collage(app)
    show_notifications(app)


if __name__ == "__main__":
    main()
