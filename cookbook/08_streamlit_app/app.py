"""
Tutor App

A Streamlit chat app around the tutor agent: pick a model, add documents to
the knowledge base, see what the agent remembers and export the chat.

Run: streamlit run cookbook/08_streamlit_app/app.py
"""

import streamlit as st
from dotenv import load_dotenv
from tutor.app.streamlit import MODEL_OPTIONS
from tutor.app.streamlit.widgets import (
    add_message,
    display_chat_messages,
    export_widget,
    handle_agent_response,
    initialize_agent,
    knowledge_widget,
    memory_widget,
    restart_agent_session,
)
from tutor_agent import get_tutor_agent

load_dotenv()

st.set_page_config(
    page_title="Agent Tutor",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


def main():
    st.title("🎓 Agent Tutor")
    st.caption("Learn to build agents, one question at a time")

    ####################################################################
    # Model selector
    ####################################################################
    selected_model = st.sidebar.selectbox("Select a model", options=list(MODEL_OPTIONS.keys()), index=0)
    model_id = MODEL_OPTIONS[selected_model]

    ####################################################################
    # Initialize Agent
    ####################################################################
    tutor_agent = initialize_agent(model_id, get_tutor_agent)

    if prompt := st.chat_input("👋 What do you want to learn today?"):
        add_message("user", prompt)

    ####################################################################
    # Sidebar widgets
    ####################################################################
    knowledge_widget(tutor_agent)
    memory_widget(tutor_agent)

    st.sidebar.markdown("#### 🛠️ Utilities")
    if st.sidebar.button("🔄 New Chat", use_container_width=True):
        restart_agent_session(agent="agent", current_model="current_model")
    export_widget("Agent Tutor")

    ####################################################################
    # Chat
    ####################################################################
    display_chat_messages()

    messages = st.session_state.get("messages") or []
    last_message = messages[-1] if messages else None
    if last_message and last_message.get("role") == "user":
        handle_agent_response(tutor_agent, last_message["content"])


main()
