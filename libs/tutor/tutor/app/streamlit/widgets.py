import os
import tempfile
from typing import Any, Callable, Dict, List, Optional

from tutor.agent.agent import Agent
from tutor.app.streamlit.utils import format_chat_history_markdown, format_tool_calls
from tutor.run.response import RunEvent
from tutor.utils.log import logger

try:
    import streamlit as st
except ImportError:
    raise ImportError("`streamlit` not installed. Please install using `pip install streamlit`")


def add_message(role: str, content: str, tool_calls: Optional[List[Dict[str, Any]]] = None) -> None:
    """Safely add a message to the chat history in the session state."""
    if "messages" not in st.session_state or not isinstance(st.session_state["messages"], list):
        st.session_state["messages"] = []

    message: Dict[str, Any] = {"role": role, "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    st.session_state["messages"].append(message)


def display_tool_calls(container: Any, tools: Optional[List[Any]]) -> None:
    """Display tool calls in expandable sections."""
    if not tools:
        return

    with container.container():
        for tool in format_tool_calls(tools):
            with st.expander(f"🛠️ {tool['name'].replace('_', ' ')}", expanded=False):
                if tool["args"]:
                    st.markdown("**Arguments:**")
                    st.json(tool["args"])
                if tool["result"]:
                    st.markdown("**Result:**")
                    st.markdown(str(tool["result"]))


def display_chat_messages() -> None:
    """Display all chat messages from the session state."""
    for message in st.session_state.get("messages", []):
        if message["role"] not in ("user", "assistant"):
            continue
        with st.chat_message(message["role"]):
            if message.get("tool_calls"):
                display_tool_calls(st.container(), message["tool_calls"])
            content = message.get("content")
            if content is not None and str(content).strip() and str(content).strip().lower() != "none":
                st.markdown(content)


def handle_agent_response(agent: Agent, question: str) -> None:
    """Stream the agent response into the chat, showing tool calls as they complete."""
    with st.chat_message("assistant"):
        tool_calls_container = st.empty()
        resp_container = st.empty()
        with st.spinner("🤔 Thinking..."):
            response = ""
            tools: List[Dict[str, Any]] = []
            try:
                for resp_chunk in agent.run(question, stream=True):
                    if resp_chunk.event == RunEvent.tool_call_completed.value and resp_chunk.tools:
                        tools.extend(resp_chunk.tools)
                        display_tool_calls(tool_calls_container, tools)
                    elif resp_chunk.event == RunEvent.run_response.value and isinstance(resp_chunk.content, str):
                        response += resp_chunk.content
                        resp_container.markdown(response)
                add_message("assistant", response, tools)
            except Exception as e:
                error_message = f"Sorry, I encountered an error: {str(e)}"
                add_message("assistant", error_message)
                st.error(error_message)
                logger.error(f"Full error details: {e}", exc_info=True)


def initialize_agent(model_id: str, agent_creation_callback: Callable[..., Agent]) -> Agent:
    """Return the agent kept in the session state, creating a new one when the model changes."""
    if st.session_state.get("agent") is None or st.session_state.get("current_model") != model_id:
        if st.session_state.get("current_model") not in (None, model_id):
            logger.info(f"Model changed from {st.session_state.get('current_model')} to {model_id}, starting new chat")
            st.session_state["messages"] = []
        agent = agent_creation_callback(model_id=model_id)
        st.session_state["agent"] = agent
        st.session_state["current_model"] = model_id
        return agent
    return st.session_state["agent"]


def restart_agent_session(**session_keys: str) -> None:
    for key in session_keys.values():
        if key in st.session_state:
            st.session_state[key] = None
    st.session_state["messages"] = []
    st.rerun()


def knowledge_widget(agent: Agent) -> None:
    """Sidebar controls to add URLs and files to the agent's knowledge and clear it."""
    st.sidebar.markdown("#### 📚 Knowledge")
    knowledge = agent.knowledge
    if knowledge is None:
        st.sidebar.info("No knowledge base configured")
        return

    st.sidebar.metric("Documents Loaded", knowledge.get_count())

    input_url = st.sidebar.text_input("Add URL to Knowledge Base")
    if input_url and input_url not in st.session_state.setdefault("loaded_urls", []):
        alert = st.sidebar.info("Processing URL...", icon="ℹ️")
        try:
            inserted = knowledge.insert(url=input_url)
            st.session_state["loaded_urls"].append(input_url)
            st.sidebar.success(f"Added {inserted} chunks from {input_url}")
        except Exception as e:
            st.sidebar.error(f"Error processing URL: {str(e)}")
        finally:
            alert.empty()

    uploaded_file = st.sidebar.file_uploader("Add a Document (.txt or .md)", type=["txt", "md"], key="file_upload")
    if uploaded_file and uploaded_file.name not in st.session_state.setdefault("loaded_files", []):
        alert = st.sidebar.info("Processing document...", icon="ℹ️")
        try:
            suffix = os.path.splitext(uploaded_file.name)[1]
            with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp_file:
                tmp_file.write(uploaded_file.read())
                tmp_path = tmp_file.name
            inserted = knowledge.insert(path=tmp_path, name=os.path.splitext(uploaded_file.name)[0])
            os.unlink(tmp_path)
            st.session_state["loaded_files"].append(uploaded_file.name)
            st.sidebar.success(f"Added {inserted} chunks from {uploaded_file.name}")
        except Exception as e:
            st.sidebar.error(f"Error processing file: {str(e)}")
        finally:
            alert.empty()

    if st.sidebar.button("Clear Knowledge Base"):
        knowledge.clear()
        st.session_state["loaded_urls"] = []
        st.session_state["loaded_files"] = []
        st.sidebar.success("Knowledge base cleared")


def memory_widget(agent: Agent, user_id: Optional[str] = None) -> None:
    """Sidebar list of the memories the agent holds about the user."""
    st.sidebar.markdown("#### 🧠 Memories")
    if agent.memory is None:
        st.sidebar.info("Memory is not enabled")
        return
    user_memories = agent.memory.get_user_memories(user_id=user_id or agent.user_id)
    if not user_memories:
        st.sidebar.info("No memories yet")
        return
    for user_memory in user_memories:
        st.sidebar.markdown(f"- {user_memory.memory}")


def export_widget(app_name: str = "Chat") -> None:
    messages = st.session_state.get("messages", [])
    if messages:
        st.sidebar.download_button(
            "💾 Export Chat",
            format_chat_history_markdown(messages),
            file_name=f"{app_name.lower().replace(' ', '_')}_chat_history.md",
            mime="text/markdown",
            use_container_width=True,
        )
    else:
        st.sidebar.button("💾 Export Chat", disabled=True, use_container_width=True, help="No messages to export")
