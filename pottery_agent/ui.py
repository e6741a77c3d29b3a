# Run from project root: streamlit run pottery_agent/ui.py
# UI talks to the A2A endpoint (message/stream over SSE). Conversation memory is kept on the server by sessionId.

import json
import os
import uuid

import requests
import streamlit as st

# Backend config
API_BASE = os.environ.get("API_BASE", "http://localhost:8000")
AGENT_ID = os.environ.get("AGENT_ID", "potteryAgent")
A2A_URL = f"{API_BASE}/a2a/agent/{AGENT_ID}"

st.title("Pottery Expert")

try:
    r = requests.get(f"{API_BASE}/a2a/health", timeout=10)
    if r.ok:
        st.caption(f"Agents online: {', '.join(r.json().get('agents') or [])}")
    else:
        st.caption("Could not reach the agent health check.")
except requests.RequestException:
    st.caption("Backend not reachable. Start the API first.")

# Session: one ID per conversation; server keeps memory by sessionId
if "chat_session_id" not in st.session_state:
    st.session_state.chat_session_id = str(uuid.uuid4())
if "messages" not in st.session_state:
    st.session_state.messages = []
if st.button("New chat", key="new_chat"):
    st.session_state.chat_session_id = str(uuid.uuid4())
    st.session_state.messages = []
    st.rerun()

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])


def _stream_request(prompt: str, session_id: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": str(uuid.uuid4()),
        "method": "message/stream",
        "params": {
            "sessionId": session_id,
            "message": {
                "kind": "message",
                "role": "user",
                "parts": [{"kind": "text", "text": prompt}],
                "messageId": str(uuid.uuid4()),
            },
            "metadata": {"userId": f"streamlit-{session_id[:8]}"},
        },
    }


if st.session_state.get("pending_query"):
    prompt = st.session_state.pending_query
    session_id = st.session_state.chat_session_id
    with st.chat_message("assistant"):
        thinking_placeholder = st.empty()
        thinking_placeholder.caption("Thinking...")
        answer_placeholder = st.empty()
        answer = ""
        try:
            r = requests.post(A2A_URL, json=_stream_request(prompt, session_id), stream=True, timeout=90)
            if not r.ok:
                answer = f"Error: {r.status_code}: {r.text[:200]}"
                thinking_placeholder.empty()
                answer_placeholder.error(answer)
            else:
                accumulated = []
                for line in r.iter_lines(decode_unicode=True):
                    if not line or not line.startswith("data:"):
                        continue
                    try:
                        event = json.loads(line[5:].strip())
                    except json.JSONDecodeError:
                        continue
                    if "error" in event:
                        answer = (event["error"].get("data") or {}).get("details") or event["error"].get("message", "Unknown error")
                        thinking_placeholder.empty()
                        answer_placeholder.error(answer)
                        break
                    status = (event.get("result") or {}).get("status") or {}
                    parts = (status.get("message") or {}).get("parts") or []
                    text = "".join(p.get("text", "") for p in parts if p.get("kind") == "text")
                    if status.get("state") == "streaming" and text:
                        accumulated.append(text)
                        thinking_placeholder.empty()
                        answer_placeholder.markdown("".join(accumulated))
                    elif status.get("state") == "completed":
                        answer = text or "".join(accumulated)
                        thinking_placeholder.empty()
                        answer_placeholder.markdown(answer)
                answer = answer or "".join(accumulated) or "No answer."
        except Exception as e:
            answer = f"Connection failed: {e}"
            thinking_placeholder.empty()
            answer_placeholder.error(answer)
        st.session_state.messages.append({"role": "assistant", "content": answer or "No answer."})
    del st.session_state["pending_query"]
    st.rerun()

if prompt := st.chat_input("Ask about clay, glazes, firing, wheel throwing, or fixing cracks"):
    st.session_state.messages.append({"role": "user", "content": prompt})
    st.session_state.pending_query = prompt
    st.rerun()
