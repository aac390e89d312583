# app.py
"""
Construction-Management Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
import logging

from cm_dashboard.config import get_config

config = get_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, str(config.get_app_setting("LOG_LEVEL", "INFO")).upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "CM Dashboard"
APP_ICON = "🏗️"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} - BOQ",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #1f77b4 0%, #2196f3 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Landing page: what the dashboard offers and where to start"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Bill-of-Quantities search and review</p>', unsafe_allow_html=True)

    st.markdown("""
    <div class="welcome-box">
        <strong>Upload a BOQ table and open the explorer from the sidebar menu.</strong>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 📋 Available Pages")
    st.markdown("""
    <div class="info-card">
        <strong>📋 BOQ Explorer</strong><br>
        <span style="color: #666;">Search descriptions, narrow by WBS level and unit,
        mark rows for removal and export the filtered view to CSV, Excel or PDF.</span>
    </div>
    """, unsafe_allow_html=True)

    st.page_link("pages/1_📋_BOQ_Explorer.py", label="Open BOQ Explorer", icon="📋")

    boq = config.get_boq_config()
    with st.expander("🔧 Settings"):
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Rows per page", boq.page_size)
        with col2:
            st.metric("Preview rows", boq.default_limit)
        with col3:
            st.metric("PDF export cap", f"{boq.max_export_rows:,}")
        st.caption("Environment: " + ("Streamlit Cloud" if config.is_cloud else "Local"))

    # Footer
    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
